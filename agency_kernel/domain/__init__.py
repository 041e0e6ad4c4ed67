"""Pure domain layer: statuses, transition tables, roles, visibility scopes, records."""
