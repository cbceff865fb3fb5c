# Services package init
"""
ModelSchema: Services Layer
============================

Service Inventory:
    - naming:               identifier generation (FK names, junction tables, aliases)
    - field_resolver:       default merging and storage classification
    - schema_compiler:      models -> table and junction table descriptors
    - query_resolver:       model -> select list, ordered joins and alias
    - executors (abstract): DDL and query collaborator contracts
    - sqlalchemy_executor:  SQLAlchemy implementations of both collaborators
    - model_service:        orchestrates compile/resolve and collaborator hand-off

The first four are pure functions over their inputs and never perform I/O.
"""
