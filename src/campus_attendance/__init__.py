"""Campus attendance package.

Feature modules (accounts, subjects, attendance, ...) keep business rules in
service classes that depend on repository protocols; Flask controllers are a
thin JSON layer on top.
"""
