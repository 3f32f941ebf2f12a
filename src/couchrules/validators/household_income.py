"""Household income must not exceed the $25,000 program threshold."""

from couchrules.rules import Threshold, create_rule_metadata

household_income = Threshold("income", "<=", 25000, "Income must be lower than $25,000")

metadata = create_rule_metadata(
    name="Household Income Validator",
    description=(
        "Validates that household income does not exceed $25,000 threshold "
        "for program eligibility"
    ),
    tags=["income", "eligibility", "financial", "threshold"],
    change_notes="Initial implementation with $25,000 income threshold",
)
