"""
Schemas module - Request/Response schemas and backend records.

- Records: what the recruiting backend returns (unknown fields rejected)
- Requests: what our API accepts
- Responses: what our API returns (camelCase on the wire)
"""
