"""Multi-record expansion engine.

Each file carrying a ``json_files`` directive is expanded into one output
entry per loaded data record. Directives load concurrently; results are
committed to the shared files map on the calling thread.
"""
