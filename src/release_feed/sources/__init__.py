"""Source modules for fetching raw tag data.

These modules talk to the source-control hosting API and hand back the
raw tag records untouched. Normalization happens elsewhere.
"""
