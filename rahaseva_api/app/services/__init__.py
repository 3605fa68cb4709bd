"""
Service layer.

Each service encapsulates the business logic of one domain and works
against the ``DocumentStore`` passed in by the endpoint, so the same
code serves requests on the live database and on mock data.
"""
