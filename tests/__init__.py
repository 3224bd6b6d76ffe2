"""
Progress Tracker Test Suite

Test Categories:
- unit: Fast, isolated tests of the services and helpers
- integration: Tests through the Flask app, API and CLI

Run tests with:
    pytest                          # Run all tests
    pytest -m unit                  # Run only unit tests
    pytest -m integration           # Run only integration tests
"""
