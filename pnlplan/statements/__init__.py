"""Statement matching, total recalculation and structural merge."""
