"""
Timeout constants for cfgsnap.

Centralizes timeout values so the publisher, gate and services agree on
defaults. Every value can be overridden through ``CfgSnapConfig``.
"""

from __future__ import annotations

# =============================================================================
# HTTP Client Timeouts
# =============================================================================

# Default timeout for posting a snapshot to the engine control endpoint
HTTP_CLIENT_TIMEOUT_S = 30.0

# =============================================================================
# Database Timeouts
# =============================================================================

# Connect timeout passed to the PostgreSQL driver
DB_CONNECT_TIMEOUT_S = 10

# Upper bound for the fan-out row fetch before the cycle is abandoned
ROW_FETCH_TIMEOUT_S = 60.0

# =============================================================================
# Subprocess Timeouts
# =============================================================================

# Timeout for a single flatc invocation
CODEGEN_TIMEOUT_S = 120
