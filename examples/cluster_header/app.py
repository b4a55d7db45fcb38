"""Cluster header -- a generated C header with option lookups.

One template renders a header for a cluster: the ZAP banner, running
attribute offsets from an accumulator, a typedef per option of the
package's ``types`` category, and the manufacturer name looked up after
every earlier lookup has settled.

Run:
    python app.py
"""

from zapgen import DictLoader, Environment, MemoryOptionLookup, OptionDatabase

templates = {
    "cluster.zapt": """\
{{zap_header}}
#pragma once

// {{cluster.name}} cluster ({{cluster.code}})
{{#each cluster.attributes~}}
{{addToAccumulator "offset" size~}}
{{/each~}}
#define {{cluster.define}}_ATTRIBUTE_END_OFFSETS { {{#iterateAccumulator "offset"}}{{sum}}{{#not_last}}, {{/not_last}}{{/iterateAccumulator}} }

{{> types.zapt}}
{{#after~}}
// Manufacturer: {{template_option_with_code "manufacturerCodes" cluster.manufacturer}}
{{/after}}""",
    "types.zapt": """\
{{#template_options "types"}}typedef {{code}} {{label}};
{{/template_options}}""",
}

db = OptionDatabase()
db.add_package(1, "zcl-builtin/gen-templates.json")
db.assign_template("cluster.zapt", 1)
db.add_option(1, "types", "uint8_t", "u8")
db.add_option(1, "types", "uint16_t", "u16")
db.add_option(1, "manufacturerCodes", "0x1002", "Silicon Labs")

env = Environment(
    loader=DictLoader(templates),
    option_lookup=MemoryOptionLookup(latency=0.01),
    db=db,
    barrier_poll_interval=0.005,
)
template = env.get_template("cluster.zapt")

output = template.render(
    cluster={
        "name": "On/Off",
        "code": "0x0006",
        "define": "ON_OFF",
        "manufacturer": "0x1002",
        "attributes": [
            {"name": "OnOff", "size": 1},
            {"name": "GlobalSceneControl", "size": 1},
            {"name": "OnTime", "size": 2},
        ],
    }
)


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()
