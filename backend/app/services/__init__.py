"""
Services package — business rules on top of the repositories.

Services raise `app.core.errors` exceptions; the API layer maps them to
HTTP responses. Like repositories they never commit.
"""
