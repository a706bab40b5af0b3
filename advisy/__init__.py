"""Advisy brokerage CRM back office."""
