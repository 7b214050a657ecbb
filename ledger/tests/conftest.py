"""Shared fixtures: sample OFX statements and an isolated database."""

import os
import tempfile

# Keep the module-level database out of the user's home directory
os.environ.setdefault("FINLEDGER_DATA_DIR", tempfile.mkdtemp(prefix="finledger-tests-"))

import pytest  # noqa: E402

from ledger.db.sqlite import Database  # noqa: E402

SGML_STATEMENT = """OFXHEADER:100
DATA:OFXSGML
VERSION:102
SECURITY:NONE
ENCODING:USASCII
CHARSET:1252
COMPRESSION:NONE
OLDFILEUID:NONE
NEWFILEUID:NONE

<OFX>
<SIGNONMSGSRSV1>
<SONRS>
<STATUS>
<CODE>0
<SEVERITY>INFO
</STATUS>
<DTSERVER>20240131120000[-3:BRT]
<LANGUAGE>POR
<FI>
<ORG>Banco Exemplo
<FID>341
</FI>
</SONRS>
</SIGNONMSGSRSV1>
<BANKMSGSRSV1>
<STMTTRNRS>
<TRNUID>1001
<STATUS>
<CODE>0
<SEVERITY>INFO
</STATUS>
<STMTRS>
<CURDEF>BRL
<BANKACCTFROM>
<BANKID>0341
<ACCTID>12345-6
<ACCTTYPE>CHECKING
</BANKACCTFROM>
<BANKTRANLIST>
<DTSTART>20240101000000[-3:BRT]
<DTEND>20240131000000[-3:BRT]
<STMTTRN>
<TRNTYPE>DEBIT
<DTPOSTED>20240115000000[-3:BRT]
<TRNAMT>-45.90
<FITID>1001
<NAME>Supermercado
<MEMO>Compra no debito
<STMTTRN>
<TRNTYPE>CREDIT
<DTPOSTED>20240120
<TRNAMT>3500,00
<FITID>1002
<MEMO>Salario Janeiro
<STMTTRN>
<TRNTYPE>FEE
<DTPOSTED>20240110
<TRNAMT>-12.50
<FITID>1003
<CHECKNUM>000123
<REFNUM>REF-9
</BANKTRANLIST>
<LEDGERBAL>
<BALAMT>3441.60
<DTASOF>20240131
</LEDGERBAL>
<AVAILBAL>
<BALAMT>3000.00
<DTASOF>20240131
</AVAILBAL>
</STMTRS>
</STMTTRNRS>
</BANKMSGSRSV1>
</OFX>
"""

XML_STATEMENT = """<?xml version="1.0" encoding="UTF-8" standalone="no"?>
<?OFX OFXHEADER="200" VERSION="211" SECURITY="NONE" OLDFILEUID="NONE" NEWFILEUID="NONE"?>
<OFX>
  <SIGNONMSGSRSV1>
    <SONRS>
      <STATUS><CODE>0</CODE><SEVERITY>INFO</SEVERITY></STATUS>
      <DTSERVER>20240331120000</DTSERVER>
      <LANGUAGE>ENG</LANGUAGE>
    </SONRS>
  </SIGNONMSGSRSV1>
  <BANKMSGSRSV1>
    <STMTTRNRS>
      <TRNUID>1</TRNUID>
      <STMTRS>
        <CURDEF>USD</CURDEF>
        <BANKACCTFROM>
          <BANKID>021000021</BANKID>
          <ACCTID>987654321</ACCTID>
          <ACCTTYPE>SAVINGS</ACCTTYPE>
        </BANKACCTFROM>
        <BANKTRANLIST>
          <DTSTART>20240301</DTSTART>
          <DTEND>20240331</DTEND>
          <STMTTRN>
            <TRNTYPE>DIRECTDEP</TRNTYPE>
            <DTPOSTED>20240310</DTPOSTED>
            <TRNAMT>5000.00</TRNAMT>
            <FITID>2002</FITID>
            <NAME>Salario</NAME>
          </STMTTRN>
          <STMTTRN>
            <TRNTYPE>POS</TRNTYPE>
            <DTPOSTED>20240312</DTPOSTED>
            <TRNAMT>-120.35</TRNAMT>
            <FITID>2003</FITID>
            <NAME>PAGAMENTO SUPERMERCADO XYZ</NAME>
          </STMTTRN>
        </BANKTRANLIST>
        <LEDGERBAL>
          <BALAMT>10250.75</BALAMT>
          <DTASOF>20240331</DTASOF>
        </LEDGERBAL>
      </STMTRS>
    </STMTTRNRS>
  </BANKMSGSRSV1>
</OFX>
"""

CREDIT_CARD_STATEMENT = """OFXHEADER:100
DATA:OFXSGML
VERSION:102

<OFX>
<CREDITCARDMSGSRSV1>
<CCSTMTTRNRS>
<CCSTMTRS>
<CURDEF>BRL
<CCACCTFROM>
<ACCTID>4111XXXXXXXX1111
</CCACCTFROM>
<BANKTRANLIST>
<STMTTRN>
<TRNTYPE>PAYMENT
<DTPOSTED>20240205
<TRNAMT>-89.90
<FITID>CC-1
<NAME>Streaming
</BANKTRANLIST>
<BALAMT>-1500.00
</CCSTMTRS>
</CCSTMTTRNRS>
</CREDITCARDMSGSRSV1>
</OFX>
"""


@pytest.fixture
def sgml_statement() -> str:
    return SGML_STATEMENT


@pytest.fixture
def xml_statement() -> str:
    return XML_STATEMENT


@pytest.fixture
def credit_card_statement() -> str:
    return CREDIT_CARD_STATEMENT


@pytest.fixture
def test_db(tmp_path, monkeypatch) -> Database:
    """A fresh database wired into the service and API modules."""
    database = Database(tmp_path / "test.db")
    monkeypatch.setattr("ledger.services.ofx_import.db", database)
    monkeypatch.setattr("ledger.main.db", database)
    return database
