# Services package.
#
# Each module exposes async functions holding the use-case logic for one
# aggregate:
#
#   user_service     registration, login (JWT), self-service profile CRUD
#   blog_service     blog CRUD + pagination + cache
#   comment_service  comment CRUD scoped to a blog
#   ranking_service  popular-posts ranking (batch write, cached read)
#
# All service functions accept a pool-bound DBHandle as their first
# argument.  Anything that reads and then writes runs inside
# ``run_in_transaction`` so the check and the write commit together.
