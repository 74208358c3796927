"""
Venue Service package.

Manages locations and their tables. Listings are scoped per caller:

- app.main: API surface for listings, CRUD and health.
- app.access: Visibility decisions (admin / assigned / anonymous).
- app.adapters: Identity service client.
- app.auth: Caller identification from bearer tokens.
- app.venues: Location and table operations.
- app.persistence: PostgreSQL storage.

Guidelines:
- The service is stateless; identity answers are never cached.
- Identity service failures degrade per path, they are never surfaced.
"""
