"""SQLite access layer: codec, connection options, pool, migrations, registry."""
