"""askdoc: ask questions about a single document via retrieval-augmented generation."""
