"""
Core models and the rule-based field extraction engine.
"""
