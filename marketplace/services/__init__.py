"""
Marketplace Services Package

Structure:
├── cloud_storage/      # S3-compatible object storage
├── notifications/      # Templated transactional email
├── fulfillment/        # Sale, enrollment, purchase and delivery records
└── course_content/     # Course outline reconciliation

Author: AgTeach Development Team
Version: 1.0.0
"""
