"""Households need at least three members."""

from couchrules.rules import Threshold, create_rule_metadata

household_size = Threshold(
    "householdSize", ">=", 3, "Household size must be greater than 2."
)

metadata = create_rule_metadata(
    name="Household Size Validator",
    description="Validates that household size is at least 3 members for program eligibility",
    tags=["household", "size", "eligibility", "members"],
    change_notes="Initial implementation with minimum 3 member requirement",
)
