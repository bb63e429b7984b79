from .driver import ArangoCursor, ArangoExecutor, create_arango_client
