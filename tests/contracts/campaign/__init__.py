"""
Campaign Service Contract Module

data_contract.py re-exports the campaign service models and provides
the test data factories and request builders.
"""
