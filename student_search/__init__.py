"""
Hybrid search over student profiles stored in a Chroma collection.

Each query runs two retrieval branches side by side: a dense branch that
embeds a synonym-expanded query and asks the vector index for nearest
neighbours, and a lexical branch that scans a bounded snapshot of the
collection for substring matches.  The fuser merges both lists by profile
id, scores every candidate on a single hybrid scale and returns the top
results.  There are no side-effects on import.
"""
