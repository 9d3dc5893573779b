"""
Conformance Test Suite

Normative behavior of the bonding curve, organized by invariant:
1. test_price_properties.py - Price formula, monotonicity, overflow
2. test_supply_conservation.py - Curve supply equals units in circulation
3. test_curve_atomicity.py - Failed operations change nothing

These tests use hypothesis for property-based testing.
"""
