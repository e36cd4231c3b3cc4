"""Commission engine services: org snapshots, pay plans, rule evaluation and the calculator."""
