"""SQLAlchemy persistence for assessment history."""
