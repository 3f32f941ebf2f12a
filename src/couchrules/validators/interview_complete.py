"""Applications are only accepted once the eligibility interview is recorded.

A missing, null, false or blank ``interviewComplete`` field counts as not
completed.
"""

from couchrules.rules import Required, create_rule_metadata

interview_complete = Required("interviewComplete", "Interview must be completed.")

metadata = create_rule_metadata(
    name="Interview Complete Validator",
    description=(
        "Validates that required interview process has been completed "
        "before application processing"
    ),
    tags=["interview", "process", "completion", "required", "eligibility"],
    change_notes="Require a present, non-blank interview completion status",
)
