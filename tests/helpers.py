"""Bibliography snippets shared by the test modules."""

SMITH_BIB = """
@article{smith2020,
  author = {Smith, John},
  year = {2020},
  title = {A Title}
}
"""

SAMPLE_BIB = """
@article{smith2020,
  author  = {Smith, John and Doe, Jane},
  title   = {On {Nested} Braces},
  journal = {Journal of Tests},
  volume  = {12},
  pages   = {1--10},
  year    = 2020,
  doi     = {10.1000/xyz}
}

@book{knuth1984,
  author    = "Donald E. Knuth",
  title     = "The TeXbook",
  publisher = {Addison-Wesley},
  year      = {1984}
}
"""
