"""
lsopentmf

List OpenTMF drivers and their devices
"""
