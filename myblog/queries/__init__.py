# Read-only statistics queries that span several tables.  These return
# plain dataclasses rather than ORM instances and never write.
