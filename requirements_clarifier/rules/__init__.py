"""Rule engines — confidence, relevance and clarification rules plus their catalogs."""
