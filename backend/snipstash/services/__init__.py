"""
SnipStash Backend - Services Layer
==================================

What:  Business rules between the routes (HTTP) and the stores (persistence).

Service Inventory:
    - CredentialStore:  accounts, bcrypt passwords, digest-keyed sessions
    - SnippetStore:     snippet rows (find_many / find_unique / create /
                        update / delete)
    - AccountService:   register, sign in, sign out, current account
    - SnippetService:   required fields, tags, merge rules, ownership
    - resolve_redirect: post-sign-in redirect allow-list

Routes call services; services call stores; only stores touch SQLAlchemy.
"""
