# Firestore Migrations
#
# Versioned Python scripts that transform TeamFinder data in Firestore.
#
# Usage:
#   python -m migrations.runner migrate
#   python -m migrations.runner status
#   python -m migrations.runner create <name>
