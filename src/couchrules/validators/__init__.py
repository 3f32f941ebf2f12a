"""Built-in eligibility rules. One module per rule, named after its predicate."""
