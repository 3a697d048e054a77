"""Collaborator clients and benchmark services"""
