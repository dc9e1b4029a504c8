"""Shared configuration, clients and models for the LeadForge backend."""
