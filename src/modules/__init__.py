"""
AgriDrone Backend Modules

- auth: Users, organizations, memberships, tokens
- fields: Polygon geometry and saved fields
- pricing: Rate cards, quote estimates, operator matching
- marketplace: Service jobs, operator offers, offer messages
- ecommerce: Catalog, cart, checkout, orders
"""
