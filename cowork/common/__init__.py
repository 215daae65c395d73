"""Small shared building blocks: results, cache, wire coercion."""
