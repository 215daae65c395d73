"""cowork: course teams client over the Roble record store.

Bounded contexts live in sub-packages (identity, records, teams, activities,
users); `cowork.wiring` assembles them for a process.
"""

__version__ = "0.1.0"
