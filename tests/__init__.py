"""VESTIBULE test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- contract/     : The user backend contract, run against every backend.
- integration/  : Real databases and Alembic (SQLite files, Postgres containers).
- functional/   : Operator workflows through the CLI.
- e2e/          : Global CLI behaviour (verbosity, logger levels, flight recorder).
- fixtures/     : Shared fixtures registered from the root conftest (no tests here).

General guidance
- Keep unit fast and deterministic; drive time with `ManualClock`, never sleep.
- Every suite is marked after its folder by the root conftest.
- Postgres-backed tests are skipped when no Docker daemon answers.
- Property-based tests live with the layer they exercise and use @pytest.mark.property.
"""
