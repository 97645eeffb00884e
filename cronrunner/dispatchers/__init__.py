"""
Built-in dispatchers. See cronrunner.plugins for the contract.
"""
