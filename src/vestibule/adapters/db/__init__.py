"""Database plumbing shared by the SQL user backend."""
