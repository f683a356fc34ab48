"""Regulatory calculation engine: exclusion filters, district resolution and
the TAMA 38 / Shaked / HFP/2666 entitlement tracks.

Entry point: ``efes.rights_engine.calculator.RightsCalculator``.
"""
