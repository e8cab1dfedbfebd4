"""Shared configuration and logging utilities"""
