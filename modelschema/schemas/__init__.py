# Schemas package init
"""
ModelSchema: Data Models
=========================

What:  Pydantic models for the declarative input (definitions.py) and for the
       compiler/resolver output (descriptors.py).
"""
