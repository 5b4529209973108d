"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the contract unit.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. access_control.py - Owner-only operations and the lifecycle gate
2. atomicity.py - All-or-nothing call semantics
3. record_log.py - Consecutive ids and index/counter agreement
4. determinism.py - Reproducible behavior and replay

These tests use hypothesis for property-based testing.
"""
