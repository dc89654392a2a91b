"""
DataBridge Pro Client

A typed client and CLI for the DataBridge Pro SQL Server migration
service: connection profiles, application selection, schema browsing,
and launching and monitoring migration jobs over its REST API.
"""

__version__ = "1.0.0"
__author__ = "DataBridge Team"
