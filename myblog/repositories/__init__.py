# Repositories package.
#
# One module per table.  Every function takes a ``DBHandle`` as its first
# argument and obtains its session through ``db.session()``, so the same
# call works against the pool or inside a unit of work:
#
#   user_repository     users
#   blog_repository     blogs
#   comment_repository  comments
#   ranking_repository  the current ranking generation
#
# Repositories never commit or roll back a transaction they did not open.
# "No row" becomes NotFoundError; any other driver failure becomes
# InfrastructureError (see ``myblog.errors.storage_errors``).
