"""
Properties Domain Layer

Pure pricing and availability rules. Nothing here touches the database:
services load the records once and hand them over.
"""
