"""Readiness-gated bootstrap for the stack's containers.

Submodules:
- probe: dependency readiness polling and health checks
- guard: persisted "already bootstrapped" markers
- sequencer: wait -> bootstrap -> fixup -> handoff pipeline
- settings: environment-derived, immutable per-role settings
- mariadb / wordpress / nginx: per-container setup actions
- wpcli: WP-CLI wrapper
"""
