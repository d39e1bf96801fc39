"""Purchase and payment services"""
