"""Pydantic schemas for collaborator payloads"""
