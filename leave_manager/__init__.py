"""Leave Manager — employee leave applications, approvals and balances."""
