"""
formforge Models

Pydantic contracts:
    from formforge.models.contracts.forms import FormState, ValidationIssue

Enums:
    from formforge.models.enums import HintLevel, LayoutStrategy
"""
