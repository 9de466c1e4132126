"""
auth: credential login and token refresh.

Provides:
  • ``TokenService``: login / refresh, JWT signing & verification
  • Password hashing (bcrypt)
  • ``SqlCredentialStore``: user record lookup
  • Login / refresh API routes
"""
