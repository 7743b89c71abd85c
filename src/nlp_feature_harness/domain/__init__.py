"""
Domain Layer

Datums, documents, dependency parses, gazetteers and the named tools
(extractors, random sources) that features are configured against.
"""
