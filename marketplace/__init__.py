"""
AgTeach Marketplace Application

Django application holding the marketplace domain: member profiles,
product catalog, courses with their section/lecture outline, and the
sales records written when a checkout is fulfilled.

Author: AgTeach Development Team
Version: 1.0.0
"""
