"""
Tapalka - Tap-to-earn Economy Engine

The economy runtime behind an incremental tapping game. It provides:
- Energy state with regeneration and exhaustion hysteresis
- A tiered upgrade catalog and purchase protocol
- Tap processing and passive income (live and offline catch-up)
- Dual-tier persistence (local snapshot + debounced remote sync)
"""

__version__ = "0.1.0"
