"""
auth: User authentication module.

Provides:
  • Signed session token creation & verification
  • Password hashing (bcrypt, cost factor 10)
  • Session registry for issued / revoked tokens
  • Register / Login / Logout API routes
  • ``get_current_user`` FastAPI dependency
"""
