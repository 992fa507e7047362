"""
L0 Data — mihomo config.yaml template.

Inert data handed to the core binary. ``{token}`` placeholders are
filled by ``domain.config_render.render_config``; string scalars
arrive already quoted.
"""

from __future__ import annotations

UI_KEY = "external-ui"

GEOX_MIRROR = "https://testingcf.jsdelivr.net/gh/MetaCubeX/meta-rules-dat@release"
HEALTH_CHECK_URL = "https://www.gstatic.com/generate_204"

CONFIG_TEMPLATE = """\
# mihomo basic config
mixed-port: {mixed_port}
allow-lan: false
mode: rule
log-level: info

external-controller: {controller}
secret: {secret}{ui_line}
# ---- Geo resources (jsDelivr mirror avoids GitHub timeouts) ----
geodata-mode: true
geo-auto-update: true
geo-update-interval: 24
geox-url:
  geoip: "{geox_mirror}/geoip.dat"
  geosite: "{geox_mirror}/geosite.dat"
  mmdb: "{geox_mirror}/country.mmdb"

# ---- Subscription (proxy provider) ----
proxy-providers:
  airport:
    type: http
    url: {sub_url}
    interval: 3600
    path: ./proxy_providers/airport.yaml
    health-check:
      enable: true
      url: {health_check_url}
      interval: 300
      timeout: 5000
      lazy: true
      expected-status: 204

# ---- Proxy groups ----
proxy-groups:
  - name: "AUTO"
    type: url-test
    use:
      - airport
    url: {health_check_url}
    interval: 300
    tolerance: 50

  - name: "PROXY"
    type: select
    proxies:
      - AUTO
      - DIRECT
    use:
      - airport

# ---- Rules ----
rules:
  - DOMAIN-SUFFIX,local,DIRECT
  - IP-CIDR,127.0.0.0/8,DIRECT,no-resolve
  - IP-CIDR,10.0.0.0/8,DIRECT,no-resolve
  - IP-CIDR,172.16.0.0/12,DIRECT,no-resolve
  - IP-CIDR,192.168.0.0/16,DIRECT,no-resolve
  - GEOIP,CN,DIRECT
  - MATCH,PROXY
"""

UNIT_TEMPLATE = """\
[Unit]
Description=mihomo (Clash compatible core)
After=network.target

[Service]
Type=simple
Restart=always
RestartSec=2
LimitNOFILE=1000000
WorkingDirectory={config_dir}
ExecStart={binary} -d {config_dir}

[Install]
WantedBy=multi-user.target
"""
