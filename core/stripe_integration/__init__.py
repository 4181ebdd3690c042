"""
Stripe Integration Package - AgTeach
====================================

This package centralizes all Stripe-related logic of the marketplace
backend.

Current Scope
-------------
- Hosted Checkout Sessions for courses (single line item) and product carts
- Retrieval of a finished session and its PaymentIntent for the frontend
- The signed `checkout.session.completed` webhook that fulfills a payment
  (enrollment for courses, stock + purchase records for products)

Design Rationale
----------------
- Core placement: Stripe is not tied to one marketplace area; sale, enrollment
  and stock writes go through `marketplace.services.fulfillment`.
- The webhook is verified with the official SDK and processed directly
  (no event mirror tables); processed event ids are kept for deduplication.

Structure
---------
- apps.py         -> App configuration (`StripeIntegrationConfig`)
- gateway.py      -> Thin wrapper over the stripe SDK (`PaymentGateway`)
- checkout.py     -> Checkout session parameters (`CheckoutSessionBuilder`)
- webhooks.py     -> Event verification, dedupe and dispatch (`WebhookEventProcessor`)
- views.py        -> API endpoints
- urls.py         -> Routes for Stripe endpoints

Author: AgTeach Development Team
Date: 2025-09-03
"""
