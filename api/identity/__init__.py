"""
Register/login/refresh relay in front of a Keycloak realm.
"""
