"""
Application package.

``main`` assembles the FastAPI app from the pieces below:

* ``core`` – configuration, logging, credentials, connectivity state,
  middleware and error handlers;
* ``store`` – the document store interface and its SQLite and mock
  implementations;
* ``models`` – persisted documents and their status state machines;
* ``schemas`` – request payloads;
* ``services`` – business logic per domain;
* ``api`` – the routers exposed under ``/api``.
"""
