"""notify/ -- Outbound notifications (template rendering and e-mail delivery).

Layer rule: notify/ imports only stdlib + third-party libraries and core/.
auth/ depends on the Mailer / TemplateRenderer shapes, never on SMTP details.
"""
