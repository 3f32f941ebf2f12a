from couchrules.rules import Threshold, create_rule_metadata

number_of_dependents = Threshold(
    "numberOfDependents",
    ">=",
    2,
    "The number of dependents in the household must be 2 or more.",
)

metadata = create_rule_metadata(
    name="Number of Dependents Validator",
    description="Validates that household has at least 2 dependents for program eligibility",
    tags=["dependents", "eligibility", "family", "children"],
    change_notes="Initial implementation with minimum 2 dependent requirement",
)
