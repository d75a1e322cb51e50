"""
Repository layer for data access operations.

`member_repo` holds the member/team queries, `predicates` builds their
WHERE clauses and `pagination` runs content and count queries for a page.
"""
