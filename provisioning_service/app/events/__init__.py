"""
Events module for the Order Provisioning Service.

Consumers (``consumers``):
    - OrderCreatedConsumer: decodes order.created deliveries, dispatches them
      to a provisioning handler and settles them with the broker

Producers (``producers``):
    - ProvisioningResultProducer: publishes fulfilled/failed result events

Event Types Supported:
    Inbound: order.created
    Outbound: fulfilled, failed (routing key equals the result type)
"""
