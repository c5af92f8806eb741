"""
Data access, one module per table or aggregate.

Functions take the AsyncSession first and only flush; `get_db` owns the
commit.  Realtime changes are recorded by the services, not here.
"""
