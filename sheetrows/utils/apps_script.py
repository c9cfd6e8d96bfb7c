# Google Apps Script users deploy as a web app ("Execute as: me", "Who has
# access: Anyone"). The update proxy POSTs {rowIndex, data} to its /exec URL.
APPS_SCRIPT_SOURCE = """function doPost(e) {
  try {
    var data = JSON.parse(e.postData.contents);
    var sheet = SpreadsheetApp.getActiveSpreadsheet().getActiveSheet();
    var rowIndex = data.rowIndex;
    var rowData = data.data;

    for (var i = 0; i < rowData.length; i++) {
      sheet.getRange(rowIndex, i + 1).setValue(rowData[i]);
    }

    return ContentService
      .createTextOutput(JSON.stringify({ success: true }))
      .setMimeType(ContentService.MimeType.JSON);
  } catch (error) {
    return ContentService
      .createTextOutput(JSON.stringify({ success: false, error: error.toString() }))
      .setMimeType(ContentService.MimeType.JSON);
  }
}

function doGet(e) {
  return ContentService
    .createTextOutput(JSON.stringify({ status: 'ok' }))
    .setMimeType(ContentService.MimeType.JSON);
}
"""

SETUP_STEPS = [
    "Open the Google Sheet and choose Extensions > Apps Script.",
    "Delete the default code and paste the script below.",
    "Click Deploy > New deployment.",
    "Choose the type Web app.",
    "Set \"Who has access\" to Anyone.",
    "Click Deploy and authorize the script.",
    "Copy the generated URL and paste it below.",
]
