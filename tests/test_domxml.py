import pytest

from yalv.domxml import (
    DomainXmlError, convert_memory_to_mib, extract_resources, summarize_domain,
)

DOMAIN_XML = """<domain type='kvm' id='1'>
  <name>web</name>
  <memory unit='KiB'>2097152</memory>
  <currentMemory unit='KiB'>2097152</currentMemory>
  <vcpu placement='static'>2</vcpu>
  <vcpus>
    <vcpu id='0' enabled='yes' hotpluggable='no'/>
  </vcpus>
  <devices>
    <emulator>/usr/bin/qemu-system-x86_64</emulator>
    <disk type='file' device='disk'>
      <driver name='qemu' type='qcow2'/>
      <source file='/var/lib/images/a.qcow2'/>
      <backingStore type='file'>
        <source file='/var/lib/images/base.qcow2'/>
      </backingStore>
      <target dev='vda' bus='virtio'/>
    </disk>
    <disk type='file' device='cdrom'>
      <source file='/isos/install.iso'/>
      <target dev='sda' bus='sata'/>
    </disk>
    <disk type='block' device='disk'>
      <source dev='/dev/vg0/data'/>
      <target dev='vdb' bus='virtio'/>
    </disk>
    <interface type='network'>
      <mac address='52:54:00:aa:bb:cc'/>
      <source network='default' bridge='virbr0'/>
      <model type='virtio'/>
      <address type='pci' domain='0x0000' bus='0x01' slot='0x00' function='0x0'/>
    </interface>
    <interface type='bridge'>
      <source bridge='br0'/>
      <target dev='vnet3'/>
      <alias name='net1'/>
    </interface>
  </devices>
</domain>
"""


@pytest.mark.parametrize("value, unit, expected", [
    (1048576, "b", "1 MiB"),
    (1024, "KiB", "1 MiB"),
    (1536, "KiB", "1.5 MiB"),
    (2, "GiB", "2048 MiB"),
    ("512", "MiB", "512 MiB"),
    (1048576, "bytes", "1 MiB"),
])
def test_convert_memory_to_mib(value, unit, expected):
    assert convert_memory_to_mib(value, unit) == expected


def test_convert_memory_rounding_rule():
    # fractional part below 0.01 is dropped, otherwise one decimal
    assert convert_memory_to_mib(1029, "KiB") == "1 MiB"
    assert convert_memory_to_mib(1035, "KiB") == "1.0 MiB"


def test_convert_memory_rejects_unknown_unit_and_garbage():
    assert convert_memory_to_mib(1024, "KB") is None
    assert convert_memory_to_mib(1024, "parsecs") is None
    assert convert_memory_to_mib("lots", "KiB") is None


def test_extract_resources():
    resources = extract_resources(DOMAIN_XML)
    assert resources.vcpu_count == "2"
    assert resources.memory == "2048 MiB"


def test_extract_resources_defaults_unit_to_kib():
    resources = extract_resources("<domain><memory>1536</memory></domain>")
    assert resources.memory == "1.5 MiB"
    assert resources.vcpu_count is None


def test_extract_resources_first_vcpu_text_wins():
    xml = "<domain><vcpu>  </vcpu><vcpu>4</vcpu><vcpu>8</vcpu></domain>"
    assert extract_resources(xml).vcpu_count == "4"


def test_extract_resources_unknown_unit_leaves_memory_empty():
    xml = "<domain><memory unit='furlongs'>5</memory><vcpu>1</vcpu></domain>"
    resources = extract_resources(xml)
    assert resources.memory is None
    assert resources.vcpu_count == "1"


def test_extract_resources_tolerates_truncated_xml():
    xml = "<domain><memory unit='MiB'>512</memory><vcpu>2</vcpu><devices><disk"
    resources = extract_resources(xml)
    assert resources.memory == "512 MiB"
    assert resources.vcpu_count == "2"


def test_extract_resources_empty_input():
    resources = extract_resources("")
    assert resources.vcpu_count is None
    assert resources.memory is None


def test_summary_disks_exclude_cdrom():
    summary = summarize_domain(DOMAIN_XML)
    assert summary.disks == ["vda: /var/lib/images/a.qcow2", "vdb: /dev/vg0/data"]


def test_summary_disk_with_missing_target_and_source():
    summary = summarize_domain("<domain><devices><disk device='disk'/></devices></domain>")
    assert summary.disks == ["unknown: unknown"]


def test_summary_disk_source_priority():
    xml = ("<domain><devices><disk device='disk'>"
           "<source name='pool/vol' volume='v1' path='/p'/><target dev='sdb'/>"
           "</disk></devices></domain>")
    assert summarize_domain(xml).disks == ["sdb: pool/vol"]


def test_summary_networks_and_emulator():
    summary = summarize_domain(DOMAIN_XML)
    assert summary.networks == ["default", "br0"]
    assert summary.emulator == "/usr/bin/qemu-system-x86_64"


def test_summary_interface_descriptors():
    summary = summarize_domain(DOMAIN_XML)
    assert summary.interfaces[0] == (
        "type=network, mac.address=52:54:00:aa:bb:cc, source.network=default, "
        "source.bridge=virbr0, model.type=virtio"
    )
    assert summary.interfaces[1] == (
        "type=bridge, source.bridge=br0, target.dev=vnet3, alias.name=net1"
    )


def test_summary_interface_text_children_and_empty_interface():
    xml = ("<domain><devices>"
           "<interface><link state='up'/><mtu size='1500'/><script>vif</script></interface>"
           "<interface/>"
           "</devices></domain>")
    summary = summarize_domain(xml)
    assert summary.interfaces == ["link.state=up, mtu.size=1500, script=vif", "N/A"]
    assert summary.networks == []


def test_summary_address_noise_only_is_dropped():
    xml = ("<domain><devices><interface>"
           "<address type='pci' domain='0x0' bus='0x1' slot='0x2' function='0x0' multifunction='on'/>"
           "</interface></devices></domain>")
    assert summarize_domain(xml).interfaces == ["address.multifunction=on"]


def test_summary_text_defaults():
    text = summarize_domain("<domain/>").to_text()
    assert text == "Network: N/A\nInterfaces: N/A\nEmulator: N/A\nDisks: N/A"


def test_summary_text_lines():
    text = summarize_domain(DOMAIN_XML).to_text().splitlines()
    assert text[0] == "Network: default, br0"
    assert text[1].startswith("Interfaces: type=network")
    assert " | type=bridge" in text[1]
    assert text[2] == "Emulator: /usr/bin/qemu-system-x86_64"
    assert text[3] == "Disks: vda: /var/lib/images/a.qcow2, vdb: /dev/vg0/data"


def test_summary_namespaced_metadata_is_ignored():
    xml = ("<domain xmlns:libosinfo='http://libosinfo.org/xmlns/libvirt/domain/1.0'>"
           "<metadata><libosinfo:libosinfo><libosinfo:os id='x'/></libosinfo:libosinfo></metadata>"
           "<devices><emulator>/bin/qemu</emulator></devices></domain>")
    assert summarize_domain(xml).emulator == "/bin/qemu"


def test_summary_malformed_xml_raises():
    with pytest.raises(DomainXmlError):
        summarize_domain("<domain><devices><disk device='disk'>")
    with pytest.raises(DomainXmlError):
        summarize_domain("not xml at all")


def test_summary_interface_mixed_content_keeps_document_order():
    xml = ("<domain><devices><interface type='network'>"
           "<driver name='vhost'>q<host csum='off'/></driver>"
           "</interface></devices></domain>")
    assert summarize_domain(xml).interfaces == [
        "type=network, driver.name=vhost, driver=q, host.csum=off"
    ]
