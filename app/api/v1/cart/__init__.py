"""Shopping cart endpoints"""
