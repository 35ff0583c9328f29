"""Bearer token authentication dependencies"""
