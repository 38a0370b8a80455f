from __future__ import annotations

import pytest

from wordpress_installer.lib.wpconfig import (
    SALT_KEYS,
    has_placeholders,
    is_configured_for,
    read_defines,
    render_config,
)

SAMPLE = """<?php
/** The name of the database for WordPress */
define( 'DB_NAME', 'database_name_here' );

/** Database username */
define( 'DB_USER', 'username_here' );

/** Database password */
define( 'DB_PASSWORD', 'password_here' );

/** Database hostname */
define( 'DB_HOST', 'localhost' );

define( 'DB_CHARSET', 'utf8' );

define( 'AUTH_KEY',         'put your unique phrase here' );
define( 'SECURE_AUTH_KEY',  'put your unique phrase here' );
define( 'LOGGED_IN_KEY',    'put your unique phrase here' );
define( 'NONCE_KEY',        'put your unique phrase here' );
define( 'AUTH_SALT',        'put your unique phrase here' );
define( 'SECURE_AUTH_SALT', 'put your unique phrase here' );
define( 'LOGGED_IN_SALT',   'put your unique phrase here' );
define( 'NONCE_SALT',       'put your unique phrase here' );

$table_prefix = 'wp_';
"""


def _values():
    values = {"DB_NAME": "wordpress_db", "DB_USER": "wp_user", "DB_PASSWORD": "p'w\\d", "DB_HOST": "localhost"}
    values.update({k: f"{k}-salt" for k in SALT_KEYS})
    return values


def test_render_substitutes_db_values_and_salts():
    assert has_placeholders(SAMPLE)
    out = render_config(SAMPLE, _values())
    defines = read_defines(out)
    assert defines["DB_NAME"] == "wordpress_db"
    assert defines["DB_PASSWORD"] == "p'w\\d"
    assert defines["NONCE_SALT"] == "NONCE_SALT-salt"
    assert defines["DB_CHARSET"] == "utf8"
    assert "$table_prefix = 'wp_';" in out
    assert not has_placeholders(out)
    assert is_configured_for(out, db_name="wordpress_db", db_user="wp_user")
    assert not is_configured_for(out, db_name="other_db", db_user="wp_user")


def test_render_is_stable_when_repeated():
    once = render_config(SAMPLE, _values())
    assert render_config(once, _values()) == once


def test_render_rejects_template_without_define():
    with pytest.raises(ValueError):
        render_config("<?php\n", {"DB_NAME": "x"})
