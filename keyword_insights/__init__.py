"""
Keyword Insights - Source Package.

This package contains modules for:
- Candidate keyword extraction from job descriptions
- LLM-assisted keyword refinement, strength rating and clustering
- Keyword frequency counting against a resume
- Assembling and storing keyword insights per resume/job pair
"""

__version__ = "1.0.0"
