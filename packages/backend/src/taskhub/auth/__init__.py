"""Authentication and authorization.

Learn: two halves that meet at the Principal:
1. Authentication → bearer access JWT → Principal(id, email, role)
2. Authorization → Principal + target resource → allow / deny

Refresh-token bookkeeping lives in taskhub.services.token_service; this
package holds the stateless pieces (signing, hashing, decisions).
"""
