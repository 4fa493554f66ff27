"""
User account lifecycle: registration, sign in/out, e-mail verification and
password recovery.

The core of this package is the authentication state machine in
:mod:`useraccounts.controllers.flow`. A browsing client moves from anonymous
to authenticated by signing up, signing in, following a verification link,
or completing password recovery; it returns to anonymous by signing out.
Whether the e-mail address is verified is tracked separately on the
:class:`.domain.User` record.

Four kinds of credential are involved:

- the interaction session (:mod:`.services.sessions`), holding the
  authenticated user ID for the lifetime of the browsing session;
- a signed bearer token cookie (:mod:`.services.tokens`), short-lived by
  default and extended when the user asks to be remembered;
- a "remember me" cookie, bound to the current password so that a password
  change revokes it;
- a random one-time token stored on the user record, mailed out for
  verification and recovery links.

Quick start
-----------

.. code-block:: python

   from useraccounts.factory import create_web_app

   app = create_web_app()    # SECRET_KEY and JWT_SECRET must be set.

"""
